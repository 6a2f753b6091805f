from .asset import AssetSpec
