"""Advisory inputs: regime based parameter overrides."""

from scalper.advisory.brief import BriefReader, MarketBrief, overrides_from_brief

__all__ = ["BriefReader", "MarketBrief", "overrides_from_brief"]
