"""Diagram catalogue: one DiagramConfig per (sex, view).

Body views share the 750x1140 reference image size; the cardiorespiratory
and abdominal-inguinal close-ups use 800x1200. Only the left-side view is
drawn mirrored.
"""

from typing import Dict, Optional, Union

from config.settings import settings
from src.models import DiagramConfig, Dimensions, Sex, ViewType

BODY_DIMENSIONS = Dimensions(width=750, height=1140)
REGIONAL_DIMENSIONS = Dimensions(width=800, height=1200)

VIEW_PRIORITY: Dict[ViewType, int] = {
    ViewType.FRONT: 1,
    ViewType.BACK: 2,
    ViewType.LEFT_SIDE: 3,
    ViewType.RIGHT_SIDE: 3,
    ViewType.CARDIORESPIRATORY: 4,
    ViewType.ABDOMINAL_INGUINAL: 5,
}

MIRRORED_VIEWS = frozenset({ViewType.LEFT_SIDE})

REGIONAL_VIEWS = frozenset({ViewType.CARDIORESPIRATORY, ViewType.ABDOMINAL_INGUINAL})


def resolve_sex(sex: Optional[Union[Sex, str]]) -> Sex:
    """Coerce a sex value, falling back to the configured default."""
    if isinstance(sex, Sex):
        return sex
    if sex:
        return Sex(str(sex).lower())
    return Sex(settings.DEFAULT_SEX)


def get_diagram_config(sex: Union[Sex, str, None], view_type: Union[ViewType, str]) -> DiagramConfig:
    """Build the DiagramConfig for a sex-qualified view."""
    sex = resolve_sex(sex)
    view_type = ViewType(view_type)
    stem = f"{sex.value}{view_type.value}"
    return DiagramConfig(
        view_type=view_type,
        sex=sex,
        image_path=f"{settings.IMAGE_BASE_PATH}/{stem}.png",
        coordinate_key=f"{stem}.png",
        priority=VIEW_PRIORITY[view_type],
        mirrored=view_type in MIRRORED_VIEWS,
        reference_dimensions=REGIONAL_DIMENSIONS if view_type in REGIONAL_VIEWS else BODY_DIMENSIONS,
    )


def get_diagram_configs(sex: Union[Sex, str, None]) -> Dict[ViewType, DiagramConfig]:
    """All views for one sex, in ViewType order."""
    return {view: get_diagram_config(sex, view) for view in ViewType}


def parse_diagram_id(diagram_id: str) -> DiagramConfig:
    """Inverse of DiagramConfig.diagram_id (e.g. "femaleleftside").

    Raises:
        ValueError: if the id does not name a known sex and view.
    """
    key = diagram_id.lower().strip()
    if key.endswith(".png") or key.endswith(".json"):
        key = key.rsplit(".", 1)[0]
    # "female" has to be tried before "male", which it ends with
    for sex in (Sex.FEMALE, Sex.MALE):
        if key.startswith(sex.value):
            view = key[len(sex.value):]
            try:
                return get_diagram_config(sex, ViewType(view))
            except ValueError:
                break
    raise ValueError(f"Unknown diagram id: {diagram_id}")
