"""Global lock for serialising read-modify-write cycles on the league state.

Every runtime code path that performs a load → mutate → save cycle on the
league document (client saves, snapshot restores, the weekly auction
rollover, the weekly snapshot job) MUST hold this lock for the duration of
that cycle.  Plain reads do not need it: saves replace the file atomically.

Usage::

    from data_lock import DATA_LOCK

    with DATA_LOCK:
        state = store.load_state()
        # ... mutate ...
        store.save_state(state)
"""

import threading

DATA_LOCK = threading.Lock()
