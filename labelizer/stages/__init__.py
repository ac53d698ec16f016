"""Pipeline stages: skip labeled files, label files, dump the record.

Each stage is a ConcurrentTransform over StreamItems sharing one
RecordStore, processing up to eight items at a time.
"""
