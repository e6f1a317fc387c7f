from .csv import csv_exporter
from .json import json
from .pprint import pprint
from .table import table
from .yaml import yaml

__all__ = ["csv_exporter", "json", "pprint", "table", "yaml"]
