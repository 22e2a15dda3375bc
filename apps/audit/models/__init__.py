from .audit_entry import AppendOnlyError, AuditEntry

__all__ = ['AppendOnlyError', 'AuditEntry']
