#!/usr/bin/env python3
"""
Decoding Demo: plist bytes -> typed records -> YAML

Shows the full workflow:
1. Decode a document into dataclass records
2. Decode a document with mixed kinds (dates, booleans, int/real scores)
3. Decode through a schema loaded from YAML
4. Dump decoded values as YAML
"""

import logging

from plistbind.decoder import loads, unmarshal
from plistbind.examples import BACKUP_PLIST, PRESIDENTS_PLIST, BackupBucket, Presidents
from plistbind.serialization import shape_from_yaml, value_to_yaml

SCHEMA = """
type: composite
name: Bucket
slots:
  - name: uuid
    key: BucketUUID
    shape: string
  - name: paths
    key: IgnoredRelativePaths
    shape: {type: sequence, element: string}
"""


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("DECODING DEMO: plist -> records -> YAML")
    print("=" * 80)

    print("\n1. BACKUP BUCKET...")
    bucket = BackupBucket()
    unmarshal(BACKUP_PLIST, bucket)
    print(f"   ✓ Bucket: {bucket.BucketName} ({bucket.BucketUUID})")
    print(f"   ✓ Ignored paths: {len(bucket.IgnoredRelativePaths)}")
    print(f"   ✓ Exclude rules: {len(bucket.Excludes.rules)}")

    print("\n2. PRESIDENTS...")
    presidents = Presidents()
    unmarshal(PRESIDENTS_PLIST, presidents)
    for p in (presidents.Lincoln, presidents.Washington):
        print(f"   ✓ {p.Name}: born {p.DOB:%Y-%m-%d}, scores {p.Scores}")

    print("\n3. YAML SCHEMA...")
    record = loads(BACKUP_PLIST, shape_from_yaml(SCHEMA))
    print(f"   ✓ uuid={record.uuid}")
    print(f"   ✓ paths={record.paths}")

    print("\n4. YAML OUTPUT:")
    print("-" * 80)
    for line in value_to_yaml(presidents).splitlines():
        print(f"   {line}")

    print("\n" + "=" * 80)


if __name__ == "__main__":
    main()
