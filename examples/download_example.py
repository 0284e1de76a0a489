from __future__ import annotations
from s3_sluice.core import get_s3_client
from s3_sluice.download import download_files
from s3_sluice.errors import setup_logging
from s3_sluice.location import Location

if __name__ == "__main__":
    setup_logging()
    s3 = get_s3_client()
    res = download_files(
        s3,
        Location("s3://my-bucket/images/"),
        "downloads/",
        match=r"\.jpg$",
        progress=True,
    )
    print("Downloaded:", res["stats"]["total"])
