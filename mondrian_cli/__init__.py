"""Client and command line tool for the Mondrian REST OLAP server"""

__version__ = "0.1.0"

from .client import Client, extract_remote_error
from .errors import *
from .matrix import Test, TestRunner, generate_test
from .metadata import CubeDescription, CubeDescriptions, Members
from .query import (
    Cut,
    Drilldown,
    LevelName,
    Measure,
    Property,
    QueryBuilder,
    ResponseFormat,
    query,
)
