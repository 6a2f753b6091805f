from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AssetSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    decimals: int = Field(ge=0)
    # SPL mint address, None for the native asset
    mint: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.mint is None
