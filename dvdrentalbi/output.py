import json

import pandas as pd
from django.core.serializers.json import DjangoJSONEncoder


def to_frame(rows):
    # object dtype keeps Decimal and date values as they are, None stays missing
    return pd.DataFrame(rows, dtype=object)


def render_table(rows):
    """Render rows as a text table, columns in first-row order."""
    if not rows:
        return '(no rows)'
    # object columns print None as "None" whatever na_rep says
    blanked = [{key: '' if value is None else value for key, value in row.items()} for row in rows]
    return to_frame(blanked).to_string(index=False, na_rep='')


def write_csv(rows, stream):
    to_frame(rows).to_csv(stream, index=False)


def write_json(rows, stream):
    json.dump(rows, stream, cls=DjangoJSONEncoder, indent=2)
    stream.write('\n')


FORMATS = {
    'csv': write_csv,
    'json': write_json,
}


def write_rows(rows, stream, fmt='text'):
    if fmt == 'text':
        stream.write(render_table(rows) + '\n')
        return
    try:
        writer = FORMATS[fmt]
    except KeyError:
        raise ValueError(f"Unknown output format {fmt!r}, expected text, csv or json") from None
    writer(rows, stream)
