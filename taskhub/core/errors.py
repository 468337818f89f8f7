class TaskhubError(Exception):
    pass


class StorageError(TaskhubError):
    pass


class ValidationError(TaskhubError):
    pass


class MigrationError(TaskhubError):
    pass


class TaskNotFoundError(TaskhubError):
    def __init__(self, task_id: object):
        self.task_id = task_id
        super().__init__(f"no task with id {task_id!r}")
