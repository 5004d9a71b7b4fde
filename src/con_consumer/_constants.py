"""Constants used throughout con-consumer."""

MEGABYTES_PER_GIGABYTE = 1024
CHUNK_SIZE = 1024 * 1024  # memory is held in 1 MiB chunks
PAGE_SIZE = 4096
CPU_BUFFER_SIZE = 32 * 1024 * 1024
KEEPALIVE_INTERVAL = 1.0  # seconds between retention passes
PROGRESS_EVERY = 1024  # chunks, ~1 GiB

DEFAULT_EXTRA_MEMORY_DELAY_SECONDS = 300
DEFAULT_METRICS_PORT = 5000
DEFAULT_METRICS_ADDRESS = "0.0.0.0"
CANCEL_POLL_INTERVAL = 0.1  # max seconds before a waiter sees a signal-handler cancel
