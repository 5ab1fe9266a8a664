"""Run the Plugin Profiler API server.

Host, port and auto-reload come from ``PROFILER_HOST``, ``PROFILER_PORT``
and ``PROFILER_RELOAD``.
"""

import uvicorn

from plugin_profiler.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "plugin_profiler.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
