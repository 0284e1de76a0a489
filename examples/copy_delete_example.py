from __future__ import annotations
from s3_sluice.copy import copy_files
from s3_sluice.core import get_s3_client, is_empty
from s3_sluice.delete import delete_files
from s3_sluice.errors import setup_logging
from s3_sluice.location import Location
from s3_sluice.utils import NegativeRegex

if __name__ == "__main__":
    setup_logging()
    s3 = get_s3_client()
    raw = Location("s3://my-bucket/raw/")
    staging = Location("s3://my-bucket/staging/")

    # Clear out anything that is not a .gz before staging
    delete_files(s3, staging, NegativeRegex(r"\.gz$"))
    copy_files(s3, raw, staging, match=r"\.gz$")
    print("raw empty:", is_empty(s3, raw))
