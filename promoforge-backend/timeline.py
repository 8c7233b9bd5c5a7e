"""
Shotstack edit models and the builders that turn a VideoSpec into one.

The edit is a tree: timeline -> tracks -> clips -> asset + timing + position.
Tracks listed first are drawn on top.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from errors import ValidationError
from schemas import Shot, VideoSpec

TITLE_SECONDS = 3.0
SLIDE_SECONDS = 2.0
IMAGE_EFFECT = "zoomInSlow"
LOGO_SCALE = 0.15
LOGO_OFFSET = (-0.03, -0.03)
BACKGROUND_COLOR = "#000000"


class ShotstackModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageAsset(ShotstackModel):
    type: Literal["image"] = "image"
    src: str


class TitleAsset(ShotstackModel):
    type: Literal["title"] = "title"
    text: str
    style: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    background: Optional[str] = None
    position: Optional[str] = None


class AudioAsset(ShotstackModel):
    type: Literal["audio"] = "audio"
    src: str
    volume: Optional[float] = None
    effect: Optional[str] = None


Asset = Annotated[Union[ImageAsset, TitleAsset, AudioAsset], Field(discriminator="type")]


class Offset(ShotstackModel):
    x: float = 0
    y: float = 0


class Transition(ShotstackModel):
    in_: Optional[str] = Field(default=None, alias="in")
    out: Optional[str] = None


class Clip(ShotstackModel):
    asset: Asset
    start: float
    length: float
    fit: Optional[str] = None
    scale: Optional[float] = None
    position: Optional[str] = None
    offset: Optional[Offset] = None
    transition: Optional[Transition] = None
    effect: Optional[str] = None
    opacity: Optional[float] = None


class Track(ShotstackModel):
    clips: List[Clip]


class Soundtrack(ShotstackModel):
    src: str
    effect: Optional[str] = None
    volume: Optional[float] = None


class Timeline(ShotstackModel):
    background: Optional[str] = BACKGROUND_COLOR
    soundtrack: Optional[Soundtrack] = None
    tracks: List[Track]


class Output(ShotstackModel):
    format: str = "mp4"
    resolution: str = "hd"
    aspect_ratio: Optional[str] = None


class Edit(ShotstackModel):
    timeline: Timeline
    output: Output

    def to_payload(self) -> dict:
        """JSON-ready body for POST /render."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _output(aspect: Optional[str]) -> Output:
    # 16:9 is the provider default and is left implicit.
    if aspect in ("9:16", "1:1"):
        return Output(aspect_ratio=aspect)
    return Output()


def _image_clips(images: List[str], duration: float) -> List[Clip]:
    length = duration / len(images)
    return [
        Clip(
            asset=ImageAsset(src=src),
            start=index * length,
            length=length,
            fit="cover",
            effect=IMAGE_EFFECT,
            transition=Transition(in_="fade", out="fade"),
        )
        for index, src in enumerate(images)
    ]


def _text_clips(spec: VideoSpec) -> List[Clip]:
    title_length = min(TITLE_SECONDS, spec.duration)
    title = Clip(
        asset=TitleAsset(
            text=spec.title,
            style="chunk",
            color="#ffffff",
            size="large",
            background=spec.theme_color,
            position="center",
        ),
        start=0,
        length=title_length,
        transition=Transition(in_="fade", out="fade"),
    )
    description = Clip(
        asset=TitleAsset(
            text=spec.description,
            style="subtitle",
            color="#ffffff",
            size="small",
            position="bottom",
        ),
        start=title_length,
        length=spec.duration - title_length,
        transition=Transition(in_="fade", out="fade"),
    )
    return [title, description]


def build_timeline(spec: VideoSpec) -> Edit:
    """
    Turns a VideoSpec into a Shotstack edit. Pure and deterministic.

    Images share the duration evenly, the title sits on the first three
    seconds and the description fills the rest.
    """
    if not spec.images:
        raise ValidationError("At least one image is required")

    tracks = [Track(clips=_text_clips(spec))]

    if spec.logo:
        tracks.append(Track(clips=[
            Clip(
                asset=ImageAsset(src=spec.logo),
                start=0,
                length=spec.duration,
                scale=LOGO_SCALE,
                position="topRight",
                offset=Offset(x=LOGO_OFFSET[0], y=LOGO_OFFSET[1]),
            )
        ]))

    tracks.append(Track(clips=_image_clips(spec.images, spec.duration)))

    if spec.voiceover_url:
        tracks.append(Track(clips=[
            Clip(asset=AudioAsset(src=spec.voiceover_url, volume=1.0), start=0, length=spec.duration)
        ]))

    soundtrack = None
    if spec.music_url:
        soundtrack = Soundtrack(src=spec.music_url, effect="fadeInFadeOut", volume=spec.music_volume)

    return Edit(
        timeline=Timeline(soundtrack=soundtrack, tracks=tracks),
        output=_output(spec.aspect_ratio),
    )


def build_slideshow(shots: List[Shot], aspect: Optional[str] = None) -> Edit:
    """Two seconds per shot, with the caption (if any) shown over the middle of the slide."""
    if not shots:
        raise ValidationError("At least one shot is required")

    slides = []
    captions = []
    for index, shot in enumerate(shots):
        start = index * SLIDE_SECONDS
        slides.append(Clip(
            asset=ImageAsset(src=shot.image_url),
            start=start,
            length=SLIDE_SECONDS,
            fit="cover",
            effect="zoomIn",
        ))
        if shot.caption:
            captions.append(Clip(
                asset=TitleAsset(text=shot.caption, style="minimal", position="bottom"),
                start=start + 0.2,
                length=SLIDE_SECONDS - 0.4,
            ))

    tracks = [Track(clips=captions)] if captions else []
    tracks.append(Track(clips=slides))
    return Edit(timeline=Timeline(tracks=tracks), output=_output(aspect))
