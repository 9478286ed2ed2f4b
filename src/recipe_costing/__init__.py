"""Recipe costing engine: ingredient prices, recipe graphs and cost rollup."""

from .utils.constants import APP_VERSION

__version__ = APP_VERSION
