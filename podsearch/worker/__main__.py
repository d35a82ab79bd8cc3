import asyncio

from podsearch.worker.main import main

asyncio.run(main())
