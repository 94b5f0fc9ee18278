"""
Ladder services

Score parsing, result bookkeeping and ladder moves that:
- Work on detached Snapshot values, never on HTTP objects
- Return a new Snapshot instead of changing the one passed in
- Leave persistence to snapshot_store
"""
