from wa_automation.infrastructure.scheduling.cron_scheduler import (CronScheduler,
                                                                    build_cron_trigger)

__all__ = ["CronScheduler", "build_cron_trigger"]
