import os

# Keep test runs from creating a logs/ directory.
os.environ.setdefault("LOG_DIR", "")
