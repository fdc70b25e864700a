from preparea.db.database import get_session, init_db
from preparea.db.operations import (
    add_card_to_team,
    apply_card_delta,
    apply_import_plan,
    create_team,
    delete_team,
    export_backup,
    get_team,
    get_team_summary,
    increment_card,
    increment_dice,
    list_team_cards,
    list_teams,
    load_ownership_rows,
    parse_backup,
    remove_card_from_team,
    rename_team,
    restore_backup,
    set_team_card_dice,
)
from preparea.db.reference import load_reference_data

__all__ = [
    "add_card_to_team",
    "apply_card_delta",
    "apply_import_plan",
    "create_team",
    "delete_team",
    "export_backup",
    "get_session",
    "get_team",
    "get_team_summary",
    "increment_card",
    "increment_dice",
    "init_db",
    "list_team_cards",
    "list_teams",
    "load_ownership_rows",
    "load_reference_data",
    "parse_backup",
    "remove_card_from_team",
    "rename_team",
    "restore_backup",
    "set_team_card_dice",
]
