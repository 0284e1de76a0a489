from __future__ import annotations
from s3_sluice.core import get_s3_client
from s3_sluice.errors import setup_logging
from s3_sluice.location import Location
from s3_sluice.move import move_files
from s3_sluice.naming import regex_renamer

if __name__ == "__main__":
    setup_logging()
    s3 = get_s3_client()
    res = move_files(
        s3,
        Location("s3://my-source/etl/processing/"),
        Location("s3://my-target/archive/2024/"),
        match=r"part-\d+",
        alter_filename=regex_renamer(r"^part-", "events-part-"),
        flatten=True,
        concurrency=20,
    )
    print("Moved:", res["stats"]["total"])
