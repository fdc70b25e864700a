from preparea.models.backup import UserStoreBackup
from preparea.models.card import CardRecord, CardText
from preparea.models.collection import CardCounts, DiceKey, OwnershipSnapshot, apply_delta
from preparea.models.failure import (
    ApiResponse,
    BackupFormatError,
    CardNotFoundError,
    EmptyCsvError,
    FailureDetail,
    FailureKind,
    KnownError,
    MissingColumnError,
    NotReadyError,
    OutcomeType,
    TeamNotFoundError,
)
from preparea.models.filters import CardGroup, FilterSelection, SearchMode
from preparea.models.imports import (
    CardUpdate,
    CollectionImportPlan,
    ImportReport,
    ImportRowIdentifier,
)
from preparea.models.reference import (
    AffiliationDefinition,
    AlignmentRecord,
    ExternalName,
    FormatRecord,
    IconRecord,
    ReferenceData,
    SetRecord,
)
from preparea.models.stats import CollectionStats, SetStats, UniverseStats
from preparea.models.team import Team, TeamCard, TeamCardInfo, TeamSummary
from preparea.models.trade import (
    DiceEntry,
    OwnershipPolicy,
    PartnerCardInfo,
    PartnerDiceInfo,
    PartnerSnapshot,
    PartnerTotals,
    TradeCardDetail,
    TradeCompareResult,
    TradeEntryFlags,
    TradeListEntry,
    TradeSnapshot,
    TradeSummary,
)
from preparea.models.vocabulary import FilterVocabulary, FormatBan, SetGroupOption

__all__ = [
    "AffiliationDefinition",
    "AlignmentRecord",
    "ApiResponse",
    "BackupFormatError",
    "CardCounts",
    "CardGroup",
    "CardNotFoundError",
    "CardRecord",
    "CardText",
    "CardUpdate",
    "CollectionImportPlan",
    "CollectionStats",
    "DiceEntry",
    "DiceKey",
    "EmptyCsvError",
    "ExternalName",
    "FailureDetail",
    "FailureKind",
    "FilterSelection",
    "FilterVocabulary",
    "FormatBan",
    "FormatRecord",
    "IconRecord",
    "ImportReport",
    "ImportRowIdentifier",
    "KnownError",
    "MissingColumnError",
    "NotReadyError",
    "OutcomeType",
    "OwnershipPolicy",
    "OwnershipSnapshot",
    "PartnerCardInfo",
    "PartnerDiceInfo",
    "PartnerSnapshot",
    "PartnerTotals",
    "ReferenceData",
    "SearchMode",
    "SetGroupOption",
    "SetRecord",
    "SetStats",
    "Team",
    "TeamCard",
    "TeamCardInfo",
    "TeamNotFoundError",
    "TeamSummary",
    "TradeCardDetail",
    "TradeCompareResult",
    "TradeEntryFlags",
    "TradeListEntry",
    "TradeSnapshot",
    "TradeSummary",
    "UniverseStats",
    "UserStoreBackup",
    "apply_delta",
]
