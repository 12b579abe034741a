"""The RPC seam between the compute client and the network transport."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = ("ComputeObject", "ComputeRpc", "RpcOptions")

ComputeObject = dict[str, Any]
RpcOptions = dict[Any, Any]


@runtime_checkable
class ComputeRpc(Protocol):
    """Transport for the Compute Engine JSON API.

    Resources are addressed by their path relative to the API root, e.g.
    ``projects/p/zones/z/disks/d``; collections by the path of the listing,
    e.g. ``projects/p/zones/z/disks``. Options are keyed by
    ``ComputeRpcOption``.

    Implementations raise ``ComputeError`` with the HTTP status and the
    server reason so that the client can decide whether to retry. Reads of a
    missing resource return ``None`` instead of raising.
    """

    async def get(self, path: str, options: RpcOptions) -> ComputeObject | None:
        """Fetch one resource, ``None`` if it does not exist."""
        ...

    async def list(self, path: str, options: RpcOptions) -> tuple[str | None, list[ComputeObject] | None]:
        """List one page of a collection.

        Returns:
            The next page token (None on the last page) and the page items
        """
        ...

    async def aggregated_list(
        self,
        path: str,
        options: RpcOptions,
    ) -> tuple[str | None, list[ComputeObject] | None]:
        """List one page of an aggregated collection (``projects/p/aggregated/disks``).

        Returns:
            The next page token and the items of every scope, flattened
        """
        ...

    async def insert(self, path: str, resource: ComputeObject, options: RpcOptions) -> ComputeObject:
        """Create a resource in the collection at ``path``.

        Returns:
            The operation tracking the creation
        """
        ...

    async def delete(self, path: str, options: RpcOptions) -> ComputeObject | None:
        """Delete a resource.

        Returns:
            The operation tracking the deletion (an empty dict for resources
            deleted synchronously), ``None`` if the resource does not exist
        """
        ...

    async def post(self, path: str, action: str, body: ComputeObject, options: RpcOptions) -> ComputeObject | None:
        """Invoke a custom method (``resize``, ``createSnapshot``, ``deprecate``).

        Returns:
            The operation tracking the action, ``None`` if the resource does
            not exist
        """
        ...
