from wa_automation.infrastructure.external.records.record_updater import DatabaseRecordUpdater

__all__ = ["DatabaseRecordUpdater"]
