"""
Quick templates: pre-set commands offered as one-step shortcuts.
"""

from typing import List, NamedTuple, Optional


class QuickTemplate(NamedTuple):
    label: str
    command: str

    @property
    def short_name(self) -> str:
        """The executable the command starts with, e.g. 'aws'."""
        parts = self.command.split()
        return parts[0] if parts else ""


QUICK_TEMPLATES: List[QuickTemplate] = [
    QuickTemplate("AWS: S3 Sync", "aws s3 sync . s3://my-bucket --delete"),
    QuickTemplate(
        "Azure: List VMs", "az vm list --output table --resource-group prod-rg"
    ),
    QuickTemplate(
        "GCP: Stop VM", "gcloud compute instances stop my-instance --zone us-central1-a"
    ),
    QuickTemplate("K8s: Get Pods", "kubectl get pods -n kube-system"),
    QuickTemplate("Docker: Rebuild", "docker-compose up -d --build"),
]


def find_template(key: str) -> Optional[QuickTemplate]:
    """
    Look up a template by 1-based index or label (case-insensitive).

    Returns:
        Optional[QuickTemplate]: The template, or None if nothing matches.
    """
    key = (key or "").strip()
    if not key:
        return None

    if key.isdigit():
        index = int(key) - 1
        if 0 <= index < len(QUICK_TEMPLATES):
            return QUICK_TEMPLATES[index]
        return None

    for template in QUICK_TEMPLATES:
        if template.label.lower() == key.lower():
            return template
    return None
