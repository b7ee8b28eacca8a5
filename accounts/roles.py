from enum import IntEnum


class Role(IntEnum):
    USER = 0
    ADMIN = 1

    @property
    def label(self):
        return "admin" if self is Role.ADMIN else "user"

    @classmethod
    def parse(cls, value):
        """
        Backend sends the role as 0/1, "0"/"1" or "Admin"/"User" depending on
        the endpoint. Anything unrecognised is a regular user.
        """
        if isinstance(value, Role):
            return value
        if isinstance(value, bool):
            return cls.USER
        if isinstance(value, int):
            return cls.ADMIN if value == cls.ADMIN else cls.USER
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("admin", "1"):
                return cls.ADMIN
        return cls.USER
