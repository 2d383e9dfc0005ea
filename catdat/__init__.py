"""
catdat — tooling for numbered .cat/.dat game archives.

Features:

- Decode .cat indexes (incrementing XOR) and extract members from the paired
  .dat blob (constant XOR).
- Build new .cat/.dat pairs from a directory tree.
- Resolve files across a directory of numbered catalogs, where the highest id
  wins and id 0 is the lowest tier.
- Optional gzip (.pck) unpacking of extracted members.

The programmatic API lives in catdat.catalog (Catalog), catdat.directory
(Directory) and catdat.pck; catdat.cli exposes the same operations as cmd_*
functions taking normal parameters.
"""

from .catalog import Catalog, IndexEntry
from .directory import Directory, parse_catalog_id

__version__ = "0.1"

__all__ = [
    "Catalog",
    "IndexEntry",
    "Directory",
    "parse_catalog_id",
    "constants",
    "cipher",
    "catalog",
    "directory",
    "pck",
]
