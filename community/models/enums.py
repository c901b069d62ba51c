"""Closed enumerations shared by models, schemas and the access evaluator."""

from enum import Enum


class RoleName(str, Enum):
    ADMINISTRATOR = "administrator"
    MODERATOR = "moderator"
    LIBRARIAN = "librarian"
