from enum import Enum


class OutputFormat(str, Enum):
    LOG = "log"
    JSON = "json"
    MARKDOWN = "markdown"
    HTML = "html"
