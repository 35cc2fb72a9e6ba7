"""
Test the example documents end to end.

Validates that the backup bucket and presidents documents decode into their
example records with exact values and order.
"""

from datetime import datetime, timezone

from plistbind.decoder import unmarshal
from plistbind.examples import (
    BACKUP_PLIST,
    PRESIDENTS_PLIST,
    BackupBucket,
    Empty,
    ExcludeRule,
    ExcludeSet,
    President,
    Presidents,
)


def test_backup_bucket():
    bucket = BackupBucket()
    unmarshal(BACKUP_PLIST, bucket)

    assert bucket == BackupBucket(
        BucketUUID="C218A47D-DAFB-4476-9C67-597E556D7D8A",
        BucketName="rsc",
        ComputerUUID="E7859547-BB9C-41C0-871E-858A0526BAE7",
        LocalPath="/Users/rsc",
        LocalMountPoint="/Users",
        IgnoredRelativePaths=["/.Trash", "/go/pkg", "/go1/pkg", "/Library/Caches"],
        Excludes=ExcludeSet(rules=[ExcludeRule(kind=2, text=".unison.")]),
    )


def test_backup_into_empty_record():
    """Every key is skipped without error."""
    empty = Empty()
    unmarshal(BACKUP_PLIST, empty)
    assert empty == Empty()


def test_presidents():
    presidents = Presidents()
    unmarshal(PRESIDENTS_PLIST, presidents)

    assert presidents == Presidents(
        Lincoln=President(
            DOB=datetime(1809, 2, 12, 9, 18, tzinfo=timezone.utc),
            Name="Abraham Lincoln",
            Assassinated=True,
            Scores=[8, 4.9000000953674316, 9],
        ),
        Washington=President(
            DOB=datetime(1732, 2, 17, 1, 32, tzinfo=timezone.utc),
            Name="George Washington",
            Assassinated=False,
            Scores=[6, 4.5999999046325684, 6],
        ),
    )


def test_president_scores_keep_kinds():
    presidents = Presidents()
    unmarshal(PRESIDENTS_PLIST, presidents)
    assert [type(s) for s in presidents.Lincoln.Scores] == [int, float, int]
