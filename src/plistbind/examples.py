"""
Example documents and destination records.

BACKUP_PLIST is a backup bucket description: strings, a list of strings and a
nested record reached through an override key ("excludes").

PRESIDENTS_PLIST exercises the remaining kinds: dates, booleans and a score
list mixing integers and reals.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List

from plistbind.shapes import plist_field


BACKUP_PLIST = b"""<plist version="1.0">
    <dict>
        <key>BucketUUID</key>
        <string>C218A47D-DAFB-4476-9C67-597E556D7D8A</string>
        <key>BucketName</key>
        <string>rsc</string>
        <key>ComputerUUID</key>
        <string>E7859547-BB9C-41C0-871E-858A0526BAE7</string>
        <key>LocalPath</key>
        <string>/Users/rsc</string>
        <key>LocalMountPoint</key>
        <string>/Users</string>
        <key>IgnoredRelativePaths</key>
        <array>
            <string>/.Trash</string>
            <string>/go/pkg</string>
            <string>/go1/pkg</string>
            <string>/Library/Caches</string>
        </array>
        <key>Excludes</key>
        <dict>
            <key>excludes</key>
            <array>
                <dict>
                    <key>type</key>
                    <integer>2</integer>
                    <key>text</key>
                    <string>.unison.</string>
                </dict>
            </array>
        </dict>
    </dict>
</plist>
"""

PRESIDENTS_PLIST = b"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist SYSTEM "file://localhost/System/Library/DTDs/PropertyList.dtd">
<plist version="1.0">
<dict>
    <key>Lincoln</key>
    <dict>
        <key>DOB</key>
        <date>1809-02-12T09:18:00Z</date>
        <key>Name</key>
        <string>Abraham Lincoln</string>
        <key>Scores</key>
        <array>
            <integer>8</integer>
            <real>4.9000000953674316</real>
            <integer>9</integer>
        </array>
        <key>Assassinated</key>
        <true/>
    </dict>
    <key>Washington</key>
    <dict>
        <key>DOB</key>
        <date>1732-02-17T01:32:00Z</date>
        <key>Name</key>
        <string>George Washington</string>
        <key>Scores</key>
        <array>
            <integer>6</integer>
            <real>4.5999999046325684</real>
            <integer>6</integer>
        </array>
        <key>Assassinated</key>
        <false/>
    </dict>
</dict>
</plist>
"""


@dataclass
class ExcludeRule:
    kind: int = plist_field(key="type", default=0)
    text: str = ""


@dataclass
class ExcludeSet:
    rules: List[ExcludeRule] = plist_field(key="excludes", default_factory=list)


@dataclass
class BackupBucket:
    """Destination for BACKUP_PLIST; attribute names match the document keys."""

    BucketUUID: str = ""
    BucketName: str = ""
    ComputerUUID: str = ""
    LocalPath: str = ""
    LocalMountPoint: str = ""
    IgnoredRelativePaths: List[str] = field(default_factory=list)
    Excludes: ExcludeSet = field(default_factory=ExcludeSet)


@dataclass
class President:
    DOB: datetime = datetime.min
    Name: str = ""
    Assassinated: bool = False
    Scores: List[Any] = field(default_factory=list)


@dataclass
class Presidents:
    Lincoln: President = field(default_factory=President)
    Washington: President = field(default_factory=President)


@dataclass
class Empty:
    """Record with no slots; every key of a document is skipped."""
    pass
