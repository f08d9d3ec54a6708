# Services package init
"""
PawCare Backend — Services Layer
==================================

What:  Business rules sitting between routes (HTTP) and the storage adapter.
Why:   Routes handle HTTP concerns; services own validation messages,
       credential handling, and the order of multi-step writes.
How:   Stateless singletons taking the request's AsyncSession and the active
       StorageAdapter as arguments, so one instance serves every backend.

Service Inventory:
    - AuthService:          logins, registration, password changes/resets, profiles
    - BookingService:       public booking form, admin status changes, deletion
    - FeedbackService:      submission and listings
    - ExportService:        full-state .xlsx workbook (pandas + openpyxl)
    - NotificationDispatcher / NotificationSender: post-response email delivery
"""
