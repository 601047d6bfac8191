# src/model.py
import torch.nn as nn


class LetterClassifier(nn.Module):
    """Maps one frame of hand keypoints to letter logits."""

    def __init__(self, input_size, hidden_size=128, num_classes=26, dropout=0.3):
        super(LetterClassifier, self).__init__()
        self.hidden_size = hidden_size

        self.features = nn.Sequential(
            nn.Linear(input_size, hidden_size),
            nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(hidden_size, hidden_size),
            nn.ReLU(),
            nn.Dropout(dropout),
        )

        # classifier
        self.fc = nn.Linear(hidden_size, num_classes)

    def forward(self, x):
        # x: [batch_size, input_size]
        out = self.features(x)
        out = self.fc(out)  # [batch, num_classes]
        return out
