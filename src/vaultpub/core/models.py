"""Data models for the note publishing pipeline"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FolderConfig(BaseModel):
    """Publication policy for one collection of notes."""
    id:               str
    vault_folder:     str = Field(default="", description="Vault-relative source folder; '' is the vault root")
    route_base:       str = Field(default="", description="URL prefix for every note of the folder")
    flatten_tree:     bool = Field(default=False, description="Drop intermediate directories from routes")
    additional_files: list[str] = Field(default_factory=list, description="Vault-relative files pulled in from elsewhere")
    display_name:     Optional[str] = None


IgnorePrimitive = bool | int | float | str


class IgnoreRule(BaseModel):
    """Marks a note non-publishable when a frontmatter property matches."""
    property:      str
    ignore_if:     Optional[bool] = None
    ignore_values: Optional[list[IgnorePrimitive]] = None


class Frontmatter(BaseModel):
    model_config = ConfigDict(frozen=True)

    flat:   dict[str, Any] = Field(default_factory=dict)
    nested: dict[str, Any] = Field(default_factory=dict)
    tags:   list[str] = Field(default_factory=list)


class IgnoredByRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    property:      str
    reason:        str                  # 'ignoreIf' or 'ignoreValues'
    matched_value: IgnorePrimitive
    rule_index:    int


class Eligibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_publishable:  bool
    ignored_by_rule: Optional[IgnoredByRule] = None


class RoutingInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug:                str
    path:                str            # intermediate segments, no leading slash
    route_base:          str
    full_path:           str
    folder_display_name: Optional[str] = None


class OriginKind(str, Enum):
    content = "content"
    frontmatter = "frontmatter"


class Origin(BaseModel):
    """Where a reference was found; property_path is set for frontmatter origins."""
    model_config = ConfigDict(frozen=True)

    kind:          OriginKind = OriginKind.content
    property_path: Optional[str] = None


CONTENT_ORIGIN = Origin()


class WikilinkKind(str, Enum):
    note = "note"
    file = "file"


class WikilinkRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw:     str                    # exact source substring
    target:  str                    # path plus optional '#subpath'
    path:    str
    subpath: Optional[str] = None
    alias:   Optional[str] = None
    origin:  Origin = CONTENT_ORIGIN
    kind:    WikilinkKind = WikilinkKind.note
    syntax:  str = "wikilink"       # 'wikilink' or 'markdown'


class ResolvedWikilink(WikilinkRef):
    is_resolved:    bool = False
    target_note_id: Optional[str] = None
    href:           Optional[str] = None


class AssetKind(str, Enum):
    image = "image"
    audio = "audio"
    video = "video"
    pdf = "pdf"
    other = "other"


class AssetDisplay(BaseModel):
    model_config = ConfigDict(frozen=True)

    alignment:     Optional[str] = None     # left, right or center
    width:         Optional[int] = None
    classes:       list[str] = Field(default_factory=list)
    raw_modifiers: list[str] = Field(default_factory=list)


class AssetRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw:     str
    target:  str
    kind:    AssetKind
    display: AssetDisplay = Field(default_factory=AssetDisplay)
    origin:  Origin = CONTENT_ORIGIN


class MapMarker(BaseModel):
    type:        str = "default"
    lat:         float
    long:        float
    link:        Optional[str] = None
    description: Optional[str] = None


class MapImageOverlay(BaseModel):
    path:         str
    top_left:     tuple[float, float] = (0.0, 0.0)
    bottom_right: tuple[float, float] = (0.0, 0.0)


class MapBlock(BaseModel):
    """A parsed ```leaflet fenced block."""
    id:             str
    raw_content:    str
    height:         Optional[str] = None
    width:          Optional[str] = None
    lat:            Optional[float] = None
    long:           Optional[float] = None
    min_zoom:       Optional[float] = None
    max_zoom:       Optional[float] = None
    default_zoom:   Optional[float] = None
    unit:           Optional[str] = None
    scale:          Optional[float] = None
    dark_mode:      Optional[bool] = None
    tile_server:    Optional[str] = None
    markers:        list[MapMarker] = Field(default_factory=list)
    image_overlays: list[MapImageOverlay] = Field(default_factory=list)


class Document(BaseModel):
    """The unit of work; each stage returns updated copies, never mutating in place."""
    model_config = ConfigDict(frozen=True)

    note_id:            str
    title:              str = ""
    vault_path:         str
    relative_path:      str
    content:            str = ""
    raw_frontmatter:    Any = None          # mapping or YAML text, consumed by normalization
    frontmatter:        Frontmatter = Field(default_factory=Frontmatter)
    folder_config:      FolderConfig
    is_additional:      bool = False
    routing:            Optional[RoutingInfo] = None
    eligibility:        Optional[Eligibility] = None
    assets:             list[AssetRef] = Field(default_factory=list)
    resolved_wikilinks: list[ResolvedWikilink] = Field(default_factory=list)
    map_blocks:         list[MapBlock] = Field(default_factory=list)
