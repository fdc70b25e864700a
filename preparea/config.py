from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Prep Area"
    debug: bool = False

    # Read-only reference database (cards, sets, formats, icons)
    content_database_url: str = f"sqlite+aiosqlite:///{DATA_DIR / 'content.sqlite'}"

    # Mutable user database (ownership, dice, teams)
    user_database_url: str = f"sqlite+aiosqlite:///{DATA_DIR / 'user.sqlite'}"

    # Pre-generated vocabulary used before the reference store is loaded
    filter_data_path: Path = DATA_DIR / "filter_data.json"

    # Default ownership policy for trade tools
    # True: keep one standard and one foil ("keep both")
    # False: keep a single copy, preferring foil
    trade_keep_both: bool = True


settings = Settings()


# =============================================================================
# TEAM LIMITS
# =============================================================================

# Maximum dice committed across all cards of one team
TEAM_MAX_DICE = 20

# Per-card dice rating used when the reference data has none (or <= 0)
DEFAULT_CARD_MAX_DICE = TEAM_MAX_DICE


# =============================================================================
# REFERENCE DATA CONVENTIONS
# =============================================================================

# Set group retired and merged into others; never offered as a filter
LEGACY_SET_GROUP = "sk2017"

# Group key used when a set has no group
OTHER_SET_GROUP = "Other"

NO_AFFILIATION_TOKEN = "NONE"
NO_AFFILIATION_LABEL = "No Affiliation"
NO_AFFILIATION_ICON = "a0.png"

# Composite affiliations missing (or wrong) in the reference data
MANUAL_AFFILIATION_COMPOSITES: dict[str, list[str]] = {"46": ["4", "6"]}

# Affiliations that only appear as components of a composite
HIDDEN_AFFILIATION_TOKENS = frozenset({"4", "6"})
