"""MCP application instance.

Tool modules import `mcp` from here rather than from server.py so that
running the server with `python -m` does not import it twice.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "TrainCheck",
    instructions=(
        "Regional rail timetables - departure and arrival boards, direct connections "
        "between two stations, station name lookup and ad-hoc custom trips"
    ),
)
