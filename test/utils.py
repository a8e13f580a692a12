from csvimporter.log import CONSOLE


def equal(obj1, obj2, extra=None):
    """Helper to print useful info if result is unexpected."""
    eq = obj1 == obj2

    if not eq:
        CONSOLE.print(obj1)
        CONSOLE.print(obj2)

        if extra is not None:
            CONSOLE.print(extra)

        return False

    return True


def collect(processor, source, chunk_size):
    """Stream a source and return the list of (rows, headers) deliveries."""
    calls = []
    processor.process(source, lambda rows, headers: calls.append((rows, headers)), chunk_size)
    return calls


def flatten(calls):
    return [row for rows, _ in calls for row in rows]
