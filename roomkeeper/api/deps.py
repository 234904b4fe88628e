from fastapi import Request

from roomkeeper.domains.publishing.cache import SnapshotCache


def get_snapshot_cache(request: Request) -> SnapshotCache:
    """Snapshot cache owned by the running application"""
    return request.app.state.snapshot_cache
