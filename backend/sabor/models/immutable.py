from __future__ import annotations

from sqlalchemy import event


class ImmutableRecordError(RuntimeError):
    """Raised when code tries to UPDATE or DELETE an append-only row."""


def append_only(model_cls):
    """
    Class decorator: refuse ORM updates and deletes for this model.

    Applies at flush time, before any SQL is emitted, so the surrounding
    unit of work rolls back untouched.
    """
    def _refuse_update(mapper, connection, target):
        raise ImmutableRecordError(f"{model_cls.__name__} rows are immutable (id={target.id})")

    def _refuse_delete(mapper, connection, target):
        raise ImmutableRecordError(f"{model_cls.__name__} rows cannot be deleted (id={target.id})")

    event.listen(model_cls, "before_update", _refuse_update)
    event.listen(model_cls, "before_delete", _refuse_delete)
    return model_cls
