"""
plistbind: typed XML property-list decoding.

Decodes a property-list document straight into caller-owned destinations
(dataclasses, lists, dicts or Box cells) without building an intermediate
document tree.

ARCHITECTURAL GUARANTEE:
------------------------
This package is decode-only. It contains ZERO knowledge of:
    - writing plist documents
    - file formats other than the XML property-list grammar
    - where document bytes come from

Layers:
    scanner   - raw bytes -> tags
    shapes    - destination descriptors
    decoder   - tags -> destination
"""

__version__ = "0.1.0"
