from enum import Enum


class AccountError(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ADDRESS_TAKEN = "ADDRESS_TAKEN"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    EMAIL_TAKEN = "EMAIL_TAKEN"
