from hostel_ledger.services.audit.fee_audit_sink import FeeAuditSink, fee_snapshot

__all__ = ["FeeAuditSink", "fee_snapshot"]
