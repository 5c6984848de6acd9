from wa_automation.application.use_cases.jobs.handlers import ExecuteWorkflowJobHandler
from wa_automation.application.use_cases.jobs.job_queue import JobQueue
from wa_automation.application.use_cases.jobs.job_service import EXECUTE_WORKFLOW_JOB, JobService
from wa_automation.application.use_cases.jobs.worker import Worker, WorkerPool

__all__ = [
    "EXECUTE_WORKFLOW_JOB",
    "ExecuteWorkflowJobHandler",
    "JobQueue",
    "JobService",
    "Worker",
    "WorkerPool",
]
