from vibe.jobs.runner import JobClient

CODE_AGENT_EVENT = "code-agent/run"

job_client = JobClient("vibe")
