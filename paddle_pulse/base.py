"""패들 펄스 기반 모델 정의입니다. / Base definitions for Paddle Pulse models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class PaddleBaseModel(BaseModel):
    """불변 공통 베이스 모델입니다. / Common immutable base model."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    def model_dump_jsonable(self, **kwargs: Any) -> dict[str, Any]:
        """JSON 직렬화 가능한 덤프입니다. / Dump JSON-serializable dict."""

        return self.model_dump(mode="json", **kwargs)


class PaddlePulseError(Exception):
    """패키지 최상위 오류입니다. / Package root error."""
