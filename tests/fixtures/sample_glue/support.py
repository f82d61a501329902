from stepglue.framework.markers import marker, pointcut

Authenticated = pointcut("Authenticated", module=__name__)
Slow = marker("Slow", module=__name__)
