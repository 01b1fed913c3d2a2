# joinexec

`joinexec` is a small query execution toolkit with no dependencies. It holds
the parts of an equi-join pipeline over in-memory tables. These are typed
nullable columns, filter predicates that produce row bitmaps, a streaming CSV
parser and a partitioned hash join.

## Modules

- **`joinexec.attribute`**: the `DataType` enumeration (`INT32`, `INT64`,
  `FP64`, `VARCHAR`). `str()` of a member gives its name. Also the frozen
  `Attribute` record, which holds a `type` and a `name`.
- **`joinexec.common`**:
  - `hash_combine(seed, k)` mixes `k` into `seed` with 64-bit MurmurHash2
    steps and returns the new seed.
  - `read_file(path)` returns a file's content as bytes.
  - `DSU(size)` is a disjoint-set union over `0 .. size-1`. It has `find` with
    path compression and `unite(x, y)`, which makes `y`'s root the root.
- **`joinexec.table_entity`**: `TableEntity(table, id)` names one occurrence
  of a table. It is frozen and hashable. Entities order by table name and then
  by id, and `str()` gives `"(table, id)"`.
- **`joinexec.csv_parser`**: `CSVParser(on_field, comma=",", escape='"',
  has_trailing_comma=False)`.
  - Feed it text in chunks of any size with `execute(buffer)`, then call
    `finish()`. Every field goes to `on_field(col, row, text)`.
  - Quoted fields may contain separators and newlines. Records end with
    `\n`, `\r` or `\r\n`.
  - When `has_trailing_comma` is set, every record must end with a separator.
  - Malformed input raises `NoTrailingCommaError`, `InconsistentColumnsError`
    (a record's column count differs from the first record's) or
    `QuoteNotClosedError`. All three subclass `CSVError`, which is a
    `ValueError`.
- **`joinexec.inner_column`**:
  - `InnerColumn(data_type)` holds a numeric column. INT32 and INT64 values
    are range-checked and FP64 values are stored as floats.
  - `VarcharColumn()` holds a text column.
  - Both have `push_back`, `push_back_null`, `is_not_null`, `get` and `len()`,
    plus the comparison methods `less`, `greater`, `less_equal`,
    `greater_equal`, `equal` and `not_equal`. `VarcharColumn` adds `like` and
    `not_like`.
  - Each comparison returns a packed bitmap: bit `i % 8` of byte `i // 8` is
    set for every non-NULL row `i` that matches.
  - `InnerTable` is a plain record of a row count and a list of columns.
- **`joinexec.statement`**: filter predicates.
  - `Comparison(column, op, value)` takes an `Op`: `EQ`, `NEQ`, `LT`, `GT`,
    `LEQ`, `GEQ`, `LIKE`, `NOT_LIKE`, `IS_NULL` or `IS_NOT_NULL`.
  - `LogicalOperation` combines predicates and is built with `make_and`,
    `make_or` and `make_not`.
  - `eval_record(record)` tests one row, where `None` is NULL.
  - `eval_columns(columns)` tests every row of a list of columns at once and
    returns a bitmap. The literal must suit the column type, or `TypeError` is
    raised, and for INT32 columns it is wrapped to 32 bits.
  - The module also has `like_match(value, pattern)` (`%` and `_` wildcards)
    and `bitmap_not`, `bitmap_and` and `bitmap_or`. `bitmap_and` and
    `bitmap_or` raise `ValueError` on bitmaps of different sizes.
- **`joinexec.execute`**:
  - `hash_join(left, right, build_left, left_attr, right_attr, key_type,
    outs)` equi-joins two lists of rows. Keys that are NULL or not of
    `key_type` never match. Each output row picks, for every `(index, type)`
    in `outs`, a column of the left row followed by the right row.
  - `project(rows, output_attrs)` keeps the chosen columns of every row.
  - `key_hash(key, data_type)` and `bucket_count(build_size, data_type)` are
    the key hashing and partition sizing that the join uses. The partition
    count is a power of two from 1 to 128, sized so that each partition fits a
    512 KiB L2 cache.

## Installation

```
pip install .
```

## Example

```python
from joinexec.attribute import DataType
from joinexec.execute import hash_join
from joinexec.inner_column import InnerColumn, VarcharColumn
from joinexec.statement import Comparison, LogicalOperation, Op

left = [[1, "a"], [2, "b"], [3, None]]
right = [[2, 20.0], [3, 30.0], [3, 31.0]]

# Build from the left side and join on column 0 of each side.
# Output indices count over the left row followed by the right row.
rows = hash_join(
    left, right,
    build_left=True,
    left_attr=0, right_attr=0,
    key_type=DataType.INT32,
    outs=[(0, DataType.INT32), (3, DataType.FP64)],
)

predicate = LogicalOperation.make_and(
    Comparison(0, Op.GEQ, 2),
    Comparison(1, Op.LT, 31),
)
kept = sorted(row for row in rows if predicate.eval_record(row))
# [[2, 20.0], [3, 30.0]]

ids = InnerColumn(DataType.INT32)
names = VarcharColumn()
for i, name in [(1, "alpha"), (2, None), (3, "beta")]:
    ids.push_back(i)
    if name is None:
        names.push_back_null()
    else:
        names.push_back(name)

bitmap = Comparison(1, Op.LIKE, "b%").eval_columns([ids, names])
# bytes([0b100]): only row 2 matches
```

`hash_join` returns rows in no guaranteed order. Sort them before you compare
them.

## What it does not do

`joinexec` gives you the building blocks and not a whole engine. It has no SQL
parser and no query planner, and it does not run a tree of plan nodes by
itself. You call `hash_join` and `project` yourself, one step at a time.
`CSVParser` sends fields to a callback but does not fill an `InnerTable`. It
has no storage on disk, no server and no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```