from stepglue.framework.markers import advice

from sample_glue.support import Authenticated


class AdminAdvice:
    @advice(r"^as an admin (.*)$", pointcuts=[Authenticated])
    def as_admin(self, step):
        pass
