"""
Typed Exception Hierarchy for the Stock Kernel.

Every error has a typed exception class, a ``code`` class attribute
(machine-readable, API-safe) and structured attributes instead of a
message that callers would have to parse.

    StockKernelError (base)
    |
    +-- MovementError
    |   +-- InvalidMovementError
    |   +-- MovementNotFoundError
    |   +-- MovementImportError
    |
    +-- LookupListError
    |   +-- UnknownLookupListError
    |
    +-- ConfigurationError
        +-- InvalidConfigurationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Movement        | INVALID_MOVEMENT            | Draft fails entry rules (product, qty, lot)
                | MOVEMENT_NOT_FOUND          | Update/delete of an unknown movement id
                | MOVEMENT_IMPORT_ERROR       | CSV row cannot be mapped to a movement
----------------|-----------------------------|-----------------------------------------
Lookup          | UNKNOWN_LOOKUP_LIST         | List name is not products/owners/sub_owners
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_CONFIGURATION       | YAML value out of range or wrong type

The valuation engines never raise these: they treat their inputs as
already validated. Validation happens at the store boundary.

Handling pattern:

    try:
        store.save_movement(draft)
    except InvalidMovementError as e:
        notify_user(f"{e.field}: {e.reason}")
"""


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Movement-related exceptions


class MovementError(StockKernelError):
    """Base exception for movement-related errors."""

    code: str = "MOVEMENT_ERROR"


class InvalidMovementError(MovementError):
    """A movement draft violates an entry rule."""

    code: str = "INVALID_MOVEMENT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid movement field '{field}': {reason}")


class MovementNotFoundError(MovementError):
    """Movement with given ID was not found."""

    code: str = "MOVEMENT_NOT_FOUND"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Movement not found: {movement_id}")


class MovementImportError(MovementError):
    """A source row could not be mapped to a movement draft."""

    code: str = "MOVEMENT_IMPORT_ERROR"

    def __init__(self, row_number: int, reason: str):
        self.row_number = row_number
        self.reason = reason
        super().__init__(f"Row {row_number}: {reason}")


# Lookup list exceptions


class LookupListError(StockKernelError):
    """Base exception for lookup list errors."""

    code: str = "LOOKUP_LIST_ERROR"


class UnknownLookupListError(LookupListError):
    """Requested lookup list does not exist."""

    code: str = "UNKNOWN_LOOKUP_LIST"

    def __init__(self, list_name: str):
        self.list_name = list_name
        super().__init__(f"Unknown lookup list: {list_name}")


# Configuration exceptions


class ConfigurationError(StockKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError):
    """A configuration value is missing, mistyped or out of range."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
