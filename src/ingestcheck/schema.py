"""Test table schema matching the fixture dataset."""

TEST_TABLE_COLUMNS = [
    ("rownumber", "int"),
    ("rowguid", "string"),
    ("xdouble", "real"),
    ("xfloat", "real"),
    ("xbool", "bool"),
    ("xint16", "int"),
    ("xint32", "int"),
    ("xint64", "long"),
    ("xuint8", "long"),
    ("xuint16", "long"),
    ("xuint32", "long"),
    ("xuint64", "long"),
    ("xdate", "datetime"),
    ("xsmalltext", "string"),
    ("xtext", "string"),
    ("xnumberAsText", "string"),
    ("xtime", "timespan"),
    ("xtextWithNulls", "string"),
    ("xdynamicWithNulls", "dynamic"),
]

TEST_TABLE_SCHEMA = "(" + ", ".join(f"{name}:{kind}" for name, kind in TEST_TABLE_COLUMNS) + ")"

MAPPING_NAME = "mappingRef"
TABLE_PREFIX = "PyTest"
