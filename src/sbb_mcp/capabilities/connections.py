"""find-connection: timetable lookups against transport.opendata.ch.

The handler is a thin shim over one HTTP GET. The decoded JSON body is handed
back to the client pretty-printed; transport failures and undecodable bodies
become domain errors so the client sees a readable message instead of a
protocol error.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import Field

from sbb_mcp.context import RequestContext
from sbb_mcp.dispatch import DispatchTable
from sbb_mcp.exceptions import DomainError
from sbb_mcp.registry import ArgumentsModel, CapabilityCategory, CapabilityDescriptor
from sbb_mcp.utilities.http import HttpClientFactory, create_http_client

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://transport.opendata.ch/v1/connections"
DEFAULT_LIMIT = 3


class FindConnectionArguments(ArgumentsModel):
    from_: str = Field(alias="from", description="Departure location")
    to: str = Field(description="Arrival location")
    date: str | None = Field(default=None, description="Date in format YYYY-MM-DD")
    time: str | None = Field(default=None, description="Time in format HH:mm")
    is_arrival_time: bool | None = Field(
        default=None,
        alias="isArrivalTime",
        description="If true, the specified time is treated as arrival time. Default is false (departure time)",
    )


FIND_CONNECTION_TOOL = CapabilityDescriptor(
    category=CapabilityCategory.TOOL,
    name="find-connection",
    description="Find public transport connections between two locations in Switzerland",
    arguments_model=FindConnectionArguments,
)


def build_query(args: FindConnectionArguments, limit: int = DEFAULT_LIMIT) -> dict[str, str]:
    """Query parameters for the connections endpoint.

    Optional values are only sent when set; ``isArrivalTime`` is sent as ``1``
    when true and omitted otherwise.
    """
    params = {"from": args.from_, "to": args.to}
    if args.date:
        params["date"] = args.date
    if args.time:
        params["time"] = args.time
    if args.is_arrival_time:
        params["isArrivalTime"] = "1"
    params["limit"] = str(limit)
    return params


async def find_connections(
    args: FindConnectionArguments,
    *,
    base_url: str = DEFAULT_API_URL,
    limit: int = DEFAULT_LIMIT,
    client_factory: HttpClientFactory = create_http_client,
) -> str:
    """Fetch connections and return the response body as indented JSON.

    Raises:
        DomainError: the request failed or the body is not JSON
    """
    params = build_query(args, limit)
    logger.debug("Looking up connections %s -> %s", args.from_, args.to)
    try:
        async with client_factory() as client:
            response = await client.get(base_url, params=params)
            data: Any = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise DomainError(f"Error finding connections: {str(e) or type(e).__name__}") from e
    return json.dumps(data, indent=2, ensure_ascii=False)


def register(
    table: DispatchTable,
    *,
    base_url: str = DEFAULT_API_URL,
    limit: int = DEFAULT_LIMIT,
    client_factory: HttpClientFactory = create_http_client,
) -> None:
    async def find_connection(ctx: RequestContext, args: FindConnectionArguments) -> str:
        return await find_connections(args, base_url=base_url, limit=limit, client_factory=client_factory)

    table.register(CapabilityCategory.TOOL, "find-connection", find_connection)
