"""
Tables of the read-only reference store.

Described with SQLAlchemy Core so the loader can feature-detect and query
them without mapping classes. Only `card_rows` and `sets` are required;
every other table is optional.
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, Text

reference_metadata = MetaData()

card_rows = Table(
    "card_rows",
    reference_metadata,
    Column("card_pk", Integer, primary_key=True),
    Column("set_id", Integer),
    Column("set_label", String),
    Column("set_group", String),
    Column("universe", String),
    Column("card_number", String),
    Column("character_name", String),
    Column("card_name", String),
    Column("cost", Integer),
    Column("energy_code", String),
    Column("energy_tokens", String),
    Column("type_name", String),
    Column("rarity", String),
    Column("rarity_rank", Integer),
    Column("gender", String),
    Column("aff_tokens", String),
    Column("align_tokens", String),
    Column("has_errata", Integer),
    Column("has_foil", Integer),
)

cards = Table(
    "cards",
    reference_metadata,
    Column("card_pk", Integer, primary_key=True),
    Column("set_id", Integer),
    Column("text_src", Text),
    Column("global_text_src", Text),
    Column("name", String),
    Column("subname", String),
    Column("maxdice", Integer),
    Column("dice_faces", Text),
)

sets = Table(
    "sets",
    reference_metadata,
    Column("set_id", Integer, primary_key=True),
    Column("set_group", String),
    Column("set_alt", String),
    Column("full_name", String),
    Column("universe", String),
)

formats = Table(
    "formats",
    reference_metadata,
    Column("format_id", Integer, primary_key=True),
    Column("code", String),
    Column("name", String),
    Column("notes", Text),
)

format_banned_sets = Table(
    "format_banned_sets",
    reference_metadata,
    Column("format_id", Integer, primary_key=True),
    Column("set_id", Integer, primary_key=True),
)

format_banned_cards = Table(
    "format_banned_cards",
    reference_metadata,
    Column("format_id", Integer, primary_key=True),
    Column("card_pk", Integer, primary_key=True),
)

affiliation_icons = Table(
    "affiliation_icons",
    reference_metadata,
    Column("token", String, primary_key=True),
    Column("file", String),
    Column("alt", String),
    Column("is_composite", Integer),
    Column("components", String),
)

alignments = Table(
    "alignments",
    reference_metadata,
    Column("token", String, primary_key=True),
    Column("name", String),
)

token_icons = Table(
    "token_icons",
    reference_metadata,
    Column("token", String, primary_key=True),
    Column("file", String),
    Column("alt", String),
)

energy_codes = Table(
    "energy_codes",
    reference_metadata,
    Column("code", String, primary_key=True),
    Column("file", String),
    Column("alt", String),
)

# External (set, character, card name) triples used by CSV interchange
tz_card_map = Table(
    "tz_card_map",
    reference_metadata,
    Column("tz_set", String, primary_key=True),
    Column("tz_character", String, primary_key=True),
    Column("tz_card_name", String, primary_key=True),
    Column("card_pk", Integer),
)
