"""
Ingestion layer — reads the six supply-chain tables into validated records.

Submodules:
  tables — CSV directory and merged JSON snapshot loaders
           (``load_snapshot_from_dir``, ``load_snapshot_from_json``,
           ``snapshot_from_mapping``).
"""
