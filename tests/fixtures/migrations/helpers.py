# Not a migration module: the loader only picks up *_migration.py files.
raise RuntimeError("helpers.py must never be imported by the loader")
