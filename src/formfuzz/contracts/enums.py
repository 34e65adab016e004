"""Status codes, kinds, and field types used across subsystem boundaries."""

from enum import StrEnum


class FieldType(StrEnum):
    """Field types a form's metadata can declare.

    Metadata may carry other type names (binary, html, reference, ...).
    Those are kept verbatim on the descriptor and have no generator.
    """

    CHAR = "char"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    MONETARY = "monetary"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    SELECTION = "selection"
    MANY2ONE = "many2one"
    ONE2MANY = "one2many"
    MANY2MANY = "many2many"


class GeneratorKind(StrEnum):
    """Closed set of value generators.

    Widget kinds (PHONE, EMAIL, URL) take precedence over the field type
    when a descriptor declares one of those widgets.
    """

    CHAR = "char"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    SELECTION = "selection"
    MANY2ONE = "many2one"
    MANY2MANY = "many2many"
    ONE2MANY = "one2many"
    PHONE = "phone"
    EMAIL = "email"
    URL = "url"


class RelationOperation(StrEnum):
    """Operation tag carried by relational generated values.

    The values are the tags the form collaborator expects on the wire.
    """

    ADD = "ADD"
    ADD_MANY = "ADD_M2M"
    CREATE = "CREATE"


class RunOutcome(StrEnum):
    """Terminal outcome of a fuzz run."""

    SUCCESS = "success"
    FAILURE = "failure"


class SessionPhase(StrEnum):
    """Phases of the fuzz session state machine.

    OPEN_FORM -> WALK_FIELDS -> (GENERATE -> APPLY -> RECONCILE)* -> SAVE -> REPORT
    """

    IDLE = "idle"
    OPEN_FORM = "open_form"
    WALK_FIELDS = "walk_fields"
    GENERATE = "generate"
    APPLY = "apply"
    RECONCILE = "reconcile"
    SAVE = "save"
    REPORT = "report"
