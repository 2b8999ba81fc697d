from enum import Enum


class OrderBy(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
