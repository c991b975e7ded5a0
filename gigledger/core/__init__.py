"""gigledger core — normalization, read-model, queries and the write path.

Modules
-------
normalizer
    ``normalize`` turns a ledger ``ProjectRecord`` into a ``NormalizedProject``.
read_model
    ``ReadModelBuilder`` scans the ledger and publishes frozen ``ReadModel``
    snapshots into a ``ReadModelStore``.
query_engine
    ``run_query`` searches, filters and sorts the open marketplace.
action_coordinator
    ``ActionCoordinator`` runs the submit / settle / rebuild state machine.
session
    ``Session`` ties the above to one signing identity.
"""
