from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

class ProgressTracker:
    def __init__(self, console):
        self.console = console

    def create_progress(self):
         return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total} batches"),
            TimeElapsedColumn(),
            console=self.console
        )

    def batch_callback(self, progress: Progress, task_id):
        """Adapt a progress task to the scheduler's (completed, total) callback."""
        def _update(completed: int, total: int) -> None:
            progress.update(task_id, completed=completed, total=total)
        return _update
