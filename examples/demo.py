"""Dataweaver -- Quick demo.

Run: python examples/demo.py
"""

from pathlib import Path

# Resolve example file paths
examples_dir = Path(__file__).parent
file_a = str(examples_dir / "students_a.csv")
file_b = str(examples_dir / "students_b.csv")

SHEET_URL = "https://docs.google.com/spreadsheets/d/demo-sheet/edit"


def main():
    from dataweaver import (
        InMemorySheetStore,
        ReconciliationSession,
        UndoLedger,
        load_dataset,
        update_statuses,
    )
    from dataweaver.ingestion import drop_rows_with_identity

    # 1. Load both files
    print("=" * 60)
    print("1. LOAD")
    print("=" * 60)
    dataset_a = load_dataset(file_a).dataset
    filtered = drop_rows_with_identity(load_dataset(file_b).dataset)
    dataset_b = filtered.dataset
    print(f"  File A: {len(dataset_a.rows)} rows, headers {dataset_a.headers}")
    print(f"  File B: {len(dataset_b.rows)} rows ({filtered.filtered_rows} already had a NISN)")
    print()

    # 2. Join and auto-match
    print("=" * 60)
    print("2. MERGE ON 'Nama'")
    print("=" * 60)
    session = ReconciliationSession(dataset_a, dataset_b)
    result = session.run("Nama")
    print(f"  Matched: {result.matched_count}, to review: {result.unmatched_count}, "
          f"auto-selected: {result.auto_selected}")
    for candidate in session.candidates:
        best = candidate.best_match["Nama"] if candidate.best_match else "-"
        print(f"    {candidate.source_row['Nama']:<15} -> {best:<20} {candidate.score}%")
    print()

    # 3. Commit the selections
    print("=" * 60)
    print("3. COMMIT")
    print("=" * 60)
    committed = session.commit_all()
    print(f"  Committed {committed.committed}; matched now {committed.matched_count}, "
          f"left {committed.unmatched_count}")
    for row in session.matched_rows:
        print(f"    {row}")
    print()

    # 4. Ticket statuses against an in-memory case sheet, then undo
    print("=" * 60)
    print("4. STATUS UPDATE AND UNDO")
    print("=" * 60)
    blank = [""] * 20
    header, ticket = list(blank), list(blank)
    header[6], header[12] = "Status", "Title"
    ticket[6], ticket[12] = "L1", "Login error #1001"
    store = InMemorySheetStore()
    store.add_spreadsheet("demo-sheet", "Case Tracker", {"All Case": [header, ticket]})
    ledger = UndoLedger()

    rows = [{"Title": "Login error #1001", "Status": "Solved", "Ticket OP": "done"}]
    updated = update_statuses(store, ledger, SHEET_URL, rows)
    print(f"  {updated.message}")
    print(f"  Sheet row 2 status: {store.rows('demo-sheet', 'All Case')[1][6]}")
    undone = ledger.undo(store)
    print(f"  {undone.message}")
    print(f"  Sheet row 2 status: {store.rows('demo-sheet', 'All Case')[1][6]}")
    print()

    print("Done! Try the CLI: dataweaver merge examples/students_a.csv examples/students_b.csv")


if __name__ == "__main__":
    main()
