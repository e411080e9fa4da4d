from health_sidecar.main_asyncio import run

run()
