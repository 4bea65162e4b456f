import time
import sys

from rich.console import Console

from embedded_json_db_engine import Database

_console = Console(file=sys.stderr, color_system="standard")


def test_performance_bulk_dataset(tmp_path):
    db_path = tmp_path / "perf.json"
    N = 5_000

    db = Database(str(db_path), auto_commit=False)

    t0 = time.perf_counter()
    db.bulk_insert("items", [
        {"ix1": i, "ix2": f"s{i % 100}", "ix3": (i % 2 == 0), "f00": f"grp{i % 5}"}
        for i in range(N)
    ])
    db.commit()
    t1 = time.perf_counter()
    _console.print(f"[perf] bulk insert + commit {N} records: {(t1 - t0):.3f}s", markup=False)

    t2 = time.perf_counter()
    db2 = Database(str(db_path))
    t3 = time.perf_counter()
    _console.print(f"[perf] reopen {N} records: {(t3 - t2):.3f}s", markup=False)
    assert db2.count("items") == N

    t4 = time.perf_counter()
    res = db2.query("items", f"ix1 >= {N // 2} & ix3 == TRUE")
    t5 = time.perf_counter()
    _console.print(f"[perf] query matched={len(res)}: {(t5 - t4):.3f}s", markup=False)
    assert len(res) == N // 4

    t6 = time.perf_counter()
    db2.transaction(lambda: db2.update("items", "f00", "grp0", {"f01": 999}))
    t7 = time.perf_counter()
    _console.print(f"[perf] transactional update: {(t7 - t6):.3f}s", markup=False)
    assert db2.count_values("items", "f01") == {"999": N // 5}
