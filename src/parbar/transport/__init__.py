"""
Transports delivering progress events from workers to the tracker.
"""

import logging

from .base import Transport
from .queue_transport import QueueTransport, create_manager_channel
from .file_transport import FileTransport

logger = logging.getLogger(__name__)

__all__ = ['Transport', 'QueueTransport', 'FileTransport', 'create_manager_channel', 'select_transport']


def select_transport(options):
    """
    Build the transport for a bar. Called once per bar.

    "auto" probes whether a cross-process message channel can be created
    (a multiprocessing manager queue) and falls back to the durable counter
    file when it cannot.

    Args:
        options: WaitBarOptions with transport and counter_dir set

    Returns:
        An unbound QueueTransport or FileTransport

    Raises:
        StorageUnavailable: If the counter file cannot be created
    """
    kind = options.transport
    if kind == "thread":
        return QueueTransport.for_threads()
    if kind == "queue":
        return QueueTransport.for_processes()
    if kind == "file":
        return FileTransport.create(options.counter_dir)

    try:
        transport = QueueTransport.for_processes()
    except (OSError, EOFError, RuntimeError) as e:
        logger.info("Message channel unavailable (%s), counting progress in %s", e, options.counter_dir)
        return FileTransport.create(options.counter_dir)
    logger.debug("Using manager queue for progress events")
    return transport
