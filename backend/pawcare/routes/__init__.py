# Routes package init
"""
PawCare Backend — API Routes Package
======================================

What:  HTTP route handlers, all mounted under /api.
How:   One module per resource; each delegates to a service and wraps the
       result in the {success, data, message} envelope.

Route Inventory:
    - health.py:     GET  /api/health
    - auth.py:       /api/auth/{login,logout,check}, /api/admin/{profile,password,forgot-password}
    - customer.py:   /api/customer/{register,login,logout,check,profile,password,
                     forgot-password,bookings}
    - services.py:   GET  /api/services, /api/services/{id}
    - bookings.py:   /api/bookings (POST public, rest admin)
    - customers.py:  GET  /api/customers (admin)
    - feedback.py:   /api/feedback, /api/feedback/public
    - export.py:     GET  /api/export/excel (admin)

Routes stay thin: extract the body, check the session guard, call the
service, shape the response. Errors are raised as PawCareError subclasses
and rendered by the handlers in main.py.
"""
