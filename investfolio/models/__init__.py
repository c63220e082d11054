"""ActiveRecord-style model classes for portfolio data."""

from investfolio.models.active_model import ActiveModel, ActiveModelError
from investfolio.models.investment import InvestmentRecord
from investfolio.models.known_asset import KnownAssetRecord

__all__ = ["ActiveModel", "ActiveModelError", "InvestmentRecord", "KnownAssetRecord"]
