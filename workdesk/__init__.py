"""workdesk: backend-for-frontend proxy for work items held in an ITSM record store."""
