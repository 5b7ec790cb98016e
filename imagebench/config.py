import os
from pathlib import Path

# Read from environment, default to "data" / "output" relative to the cwd
DATA_DIR = Path(os.environ.get("IMAGEBENCH_DATA_DIR", "data"))
OUTPUT_DIR = Path(os.environ.get("IMAGEBENCH_OUTPUT_DIR", "output"))


def get_data_dir() -> Path:
    """Get the configured corpus directory (holds png/ and jpg/)."""
    return DATA_DIR


def get_output_dir() -> Path:
    """Get the directory that timestamped run folders are written into."""
    return OUTPUT_DIR
