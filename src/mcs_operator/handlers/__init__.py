"""
Handlers package - Contains the Kopf event handlers of the MCS operator.

- service_export.py: ServiceExport lifecycle, periodic resync and
  EndpointSlice change notifications
"""
