#!/usr/bin/env python3
"""
Demo runner for the parallel progress bar.

Runs one of four example workloads, each task sleeping for a random time
before reporting, on a thread or process pool:

1. Default bar, parallel
2. Bar of length 10, tasks run one after another
3. Wait and final messages, parallel
4. '=' marker, no date, no overwrite, a random number per report, parallel

Usage:
    python run.py --example 3 --tasks 50 --workers 8
    python -m parbar.orchestrator --example 4 --mode process --transport file
"""

import argparse
import logging
import multiprocessing
import random
import sys
import time
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed

from .core.config import TRANSPORT_KINDS, ERASE_MODES
from .core.errors import ParBarError
from .core.utils import setup_encoding, safe_print
from .waitbar import ParWaitBar

logger = logging.getLogger(__name__)

EXAMPLES = {
    1: {"parallel": True, "options": {}},
    2: {"parallel": False, "options": {"bar_length": 10}},
    3: {"parallel": True, "options": {"wait_message": "Hang on...", "final_message": "Done!"}},
    4: {
        "parallel": True,
        "with_message": True,
        "options": {
            "marker": "=",
            "bar_length": 10,
            "wait_message": "Hang on...",
            "final_message": "Done!",
            "display_date": False,
            "overwrite": False,
        },
    },
}


def run_task(bar, task_num, max_sleep, with_message=False):
    """
    Simulate one unit of work and report it.

    Module-level so process pools can pickle it.

    Args:
        bar: ParWaitBar shared by all tasks
        task_num: Index of the task
        max_sleep: Upper bound of the random sleep, in seconds
        with_message: Report a random number as the bar message

    Returns:
        task_num
    """
    time.sleep(random.uniform(0, max_sleep))
    message = None
    if with_message:
        message = f"Here is a random number:{random.randint(1, 1000)}"
    bar.report_progress(message)
    return task_num


def run_example(example, total_tasks, num_workers, mode="thread", transport=None,
                max_sleep=1.0, erase=None, stream=None):
    """
    Run one example workload to completion.

    Args:
        example: Example number (1-4)
        total_tasks: Number of tasks
        num_workers: Pool size for parallel examples
        mode: "thread" or "process" pool
        transport: Bar transport, None for the default
        max_sleep: Upper bound of each task's random sleep
        erase: Erase mode, None for the default
        stream: Output stream for the bar

    Returns:
        List of error strings, empty if every task reported
    """
    workload = EXAMPLES[example]
    with_message = workload.get("with_message", False)
    bar = ParWaitBar(total_tasks, transport=transport, erase=erase, stream=stream, **workload["options"])
    errors = []

    with bar:
        if not workload["parallel"]:
            for task_num in range(total_tasks):
                run_task(bar, task_num, max_sleep, with_message)
        else:
            pool_class = ProcessPoolExecutor if mode == "process" else ThreadPoolExecutor
            with pool_class(max_workers=num_workers) as executor:
                futures = {
                    executor.submit(run_task, bar, task_num, max_sleep, with_message): task_num
                    for task_num in range(total_tasks)
                }
                for future in as_completed(futures):
                    task_num = futures[future]
                    try:
                        future.result()
                    except ParBarError as e:
                        errors.append(f"task {task_num} ({e})")
                        logger.error("Task %d could not report progress: %s", task_num, e)
        if not errors:
            # some reports are still queued for the consumer
            bar.join()

    return errors


def main(argv=None):
    """Main entry point for the demo."""
    parser = argparse.ArgumentParser(
        description="Parallel progress bar demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default bar, tasks on a thread pool
  python run.py

  # Custom marker, one line per report, tasks in separate processes
  python run.py --example 4 --mode process

  # Force the counter-file transport
  python run.py --mode process --transport file
        """
    )

    # Auto-detect a sensible pool size
    cpu_count = multiprocessing.cpu_count()
    default_workers = min(max(cpu_count, 4), 12)

    parser.add_argument("--example", type=int, choices=sorted(EXAMPLES), default=1,
                        help="Example workload to run (default: 1)")
    parser.add_argument("--tasks", type=int, default=100,
                        help="Number of tasks (default: 100)")
    parser.add_argument("--workers", type=int, default=default_workers,
                        help=f"Number of parallel workers (default: {default_workers})")
    parser.add_argument("--mode", choices=["thread", "process"], default="thread",
                        help="Run tasks on a thread or a process pool (default: thread)")
    parser.add_argument("--transport", choices=TRANSPORT_KINDS,
                        help="Progress transport (default: PARBAR_TRANSPORT or auto)")
    parser.add_argument("--erase", choices=ERASE_MODES,
                        help="How to erase the previous line (default: PARBAR_ERASE or auto)")
    parser.add_argument("--max-sleep", type=float, default=1.0,
                        help="Maximum random duration of a task in seconds (default: 1.0)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log diagnostics to stderr")

    args = parser.parse_args(argv)

    if args.tasks < 1:
        parser.error("--tasks must be at least 1")
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.mode == "process" and args.transport == "thread":
        parser.error("--transport thread cannot be used with --mode process")

    setup_encoding()
    # log records go to stderr so they never break the bar on stdout
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )

    num_workers = min(args.workers, args.tasks)
    try:
        errors = run_example(
            args.example, args.tasks, num_workers,
            mode=args.mode, transport=args.transport,
            max_sleep=args.max_sleep, erase=args.erase
        )
    except ParBarError as e:
        safe_print(f"Error: {e}", file=sys.stderr, flush=True)
        return 1

    if errors:
        safe_print("COMPLETED WITH ERRORS:", file=sys.stderr, flush=True)
        for err in errors:
            safe_print(f"  [X] {err}", file=sys.stderr, flush=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
