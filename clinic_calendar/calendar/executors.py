"""
Thread pool executors for background store calls
"""
from concurrent.futures import ThreadPoolExecutor


# One worker keeps store writes in the order the user issued them
store_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="store_sync")
