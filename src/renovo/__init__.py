"""Batch rename and resize modules.

Submodules
----------
rules
    Rename rule types and their dict/JSON records.
rename
    Rule-chain application to a single file name.
resize
    Image resize engine and geometric helpers.
batch
    Preview/apply orchestration over ordered file lists.
results
    Per-item result records.
io_utils
    Path, listing and image I/O helpers.
storage
    SQLite-backed rule presets and operation history.
errors
    Item-scoped exception types.
"""
