# Services package init
"""
Prescription API — Services Layer
==================================

Service Inventory:
    - DataService: stored-procedure calls and single-row table access
    - PrescriptionService: the prescription and medical-detail operations,
      built on DataService

Both are stateless singletons; the request's AsyncSession is passed to
every call.
"""
