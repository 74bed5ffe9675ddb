from django.db import IntegrityError, transaction


def find_or_create_locked(queryset, defaults=None, **lookup):
    """Return the row matching `lookup`, creating it when missing.

    The row is locked for the rest of the surrounding transaction. When two
    transactions race to create the same key, the loser hits the unique
    constraint, its savepoint is rolled back and the winner's row is returned.
    """
    queryset = queryset.select_for_update()
    try:
        with transaction.atomic():
            return queryset.get_or_create(defaults=defaults, **lookup)
    except IntegrityError:
        return queryset.get(**lookup), False
