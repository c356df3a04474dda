import enum


class MaterialTypes(int, enum.Enum):
    PILE = 5
    REBAR = 6
    I_BEAM = 7
    STRAIGHT_SEAM_PIPE = 8
    CHANNEL = 9
    ANGULAR_ELEMENT = 10
    SQUARE_PIPE = 11
    ANGLE = 12
    CIRCLE = 13
    HOT_ROLLED_SHEET = 14
    CONCRETE = 15
    EMBEDDED_PART = 16
    ANCHOR_BOLT = 17
    SUPPORT_SHELF = 18
    NUT = 19
    CONES = 20
    CONDUCTOR = 21


class MaterialProperties(int, enum.Enum):
    WEDGE_SHAPED = 3
    SCRAP = 4
    WITH_LOCK = 5
    WITH_SHEET = 6
    WITH_PIPE = 7
    PAIRED = 8
    JOINED = 9
    ANGULAR = 10


class TransformationKind(int, enum.Enum):
    """Server-side transformation type codes."""
    CUT = 1
    JOIN = 2
    ANGLE = 3
    WEDGE = 4
    BEAM = 5
    ANGLE_SPLIT = 6
    BEAM_SPLIT = 7
    EMBED = 8
    SUPPORT = 9
    KERNEL = 10
    MSB = 11


class CutType(str, enum.Enum):
    STANDARD = "standard"
    EQUAL = "equal"


class FailureReason(str, enum.Enum):
    LOT_NOT_FOUND = "lot_not_found"
    INVALID_CUT = "invalid_cut"
    NOT_CUT_PIECE = "not_cut_piece"
    ORIGINAL_NOT_FOUND = "original_not_found"
    LOT_NOT_AVAILABLE = "lot_not_available"
    INCOMPATIBLE_BRANDS = "incompatible_brands"
    NO_OPPOSITE_STANDARD = "no_opposite_standard"
    NOTHING_SELECTED = "nothing_selected"
    NO_PREVIEW = "no_preview"
    ALREADY_JOINED = "already_joined"
    RESULT_NOT_FOUND = "result_not_found"
    UNCHANGED = "unchanged"
    UNSUPPORTED_KIND = "unsupported_kind"
    STANDARD_NOT_FOUND = "standard_not_found"


# Types with no separate joined standard; a join keeps the standard as is
JOIN_KEEPS_STANDARD_TYPES = {
    MaterialTypes.I_BEAM,
    MaterialTypes.STRAIGHT_SEAM_PIPE,
}
