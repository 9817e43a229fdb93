"""Domain models shared by inference orchestration and ranking."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Box(BaseModel):
    """Axis-aligned rectangle anchored at its top-left corner."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def intersection_area(self, other: "Box") -> float:
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.x + self.width, other.x + other.width)
        bottom = min(self.y + self.height, other.y + other.height)
        if right <= left or bottom <= top:
            return 0.0
        return (right - left) * (bottom - top)


class DrawnBox(BaseModel):
    """A box the user dragged on the rendered image, in screen pixels."""

    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point
    label: str | None = None

    def to_box(self) -> Box:
        # Users can drag in any direction
        return Box(
            x=min(self.start.x, self.end.x),
            y=min(self.start.y, self.end.y),
            width=abs(self.end.x - self.start.x),
            height=abs(self.end.y - self.start.y),
        )


class PredictedBox(BaseModel):
    """A model prediction in original-image pixels, top-left anchored."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: str = Field(alias="class")
    x: float
    y: float
    width: float
    height: float
    confidence: float = Field(ge=0.0, le=1.0)

    def to_box(self) -> Box:
        return Box(x=self.x, y=self.y, width=self.width, height=self.height)


class ImageFrame(BaseModel):
    """Placement of the displayed image, used to map rendered to original pixels."""

    model_config = ConfigDict(frozen=True)

    rendered_width: float = Field(gt=0)
    rendered_height: float = Field(gt=0)
    offset_x: float = 0.0
    offset_y: float = 0.0
    original_width: float | None = Field(default=None, gt=0)
    original_height: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _original_size_is_complete(self) -> "ImageFrame":
        if (self.original_width is None) != (self.original_height is None):
            raise ValueError(
                "original_width and original_height must be given together"
            )
        return self

    @property
    def scale(self) -> tuple[float, float]:
        if self.original_width is None or self.original_height is None:
            return 1.0, 1.0
        return (
            self.original_width / self.rendered_width,
            self.original_height / self.rendered_height,
        )

    def with_original_size(self, width: float, height: float) -> "ImageFrame":
        """Fill in the source image size unless the frame already knows it."""
        if self.original_width is not None:
            return self
        if width <= 0 or height <= 0:
            return self
        return self.model_copy(
            update={"original_width": width, "original_height": height}
        )

    def to_original(self, box: Box) -> Box:
        scale_x, scale_y = self.scale
        return Box(
            x=(box.x - self.offset_x) * scale_x,
            y=(box.y - self.offset_y) * scale_y,
            width=box.width * scale_x,
            height=box.height * scale_y,
        )


class ClassCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    count: int = 0


class ModelCandidate(BaseModel):
    """A detection model eligible for ranking, as returned by the candidate search."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    class_histogram: list[ClassCount] = Field(default_factory=list)
    semantic_score: float | None = Field(default=None, ge=0, le=100)
    image_similarity_score: float | None = Field(default=None, ge=0, le=100)

    url: str | None = None
    version: int | None = None
    dataset_id: str | None = None

    @property
    def endpoint(self) -> str:
        if self.url and self.version is not None:
            return f"{self.url}/{self.version}"
        return self.id


class InferenceResult(BaseModel):
    """Settled outcome of one model's inference call."""

    model_id: str
    predictions: list[PredictedBox] = Field(default_factory=list)
    image_width: float = 0
    image_height: float = 0
    elapsed_seconds: float = 0.0
    inference_id: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, model_id: str, message: str) -> "InferenceResult":
        return cls(model_id=model_id, error=message)


class ScoreComponents(BaseModel):
    """Per-signal scores in [0, 100]; None means the signal is unavailable."""

    predictions_score: float | None = None
    metadata_score: float | None = None
    semantic_score: float | None = None
    image_similarity_score: float | None = None


class RankedCandidate(BaseModel):
    model_id: str
    final_score: float = Field(ge=0, le=100)
    rank: int
    is_best_match: bool = False
    components: ScoreComponents = Field(default_factory=ScoreComponents)
